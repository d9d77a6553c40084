"""Web Server Gateway Interface entry-point."""

from intake.factory import create_app

application = create_app()

if __name__ == '__main__':
    application.run(port=application.config['PORT'])
