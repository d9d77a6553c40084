"""Install the story and contact intake service."""

from setuptools import setup, find_packages

setup(
    name='intake-service',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    zip_safe=False,
    python_requires='>=3.8',
    install_requires=[
        'flask>=2.2',
        'werkzeug>=2.2',
        'celery>=5.2',
        'redis>=4.0',
        'unidecode',
        'python-dateutil',
        'pytz',
    ],
    extras_require={
        'test': ['pytest'],
    },
    package_data={
        'intake': ['templates/intake/*', 'static/*'],
    },
    include_package_data=True
)
