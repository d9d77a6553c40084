"""
Intake service for transformation stories and contact/booking requests.

Each accepted submission is written as one JSON record on the local
filesystem. Story submissions may carry a photo, which is kept in a separate
attachment directory and referenced by filename from the record. Contact
submissions trigger a confirmation e-mail to the submitter.

Records are append-only: nothing in this package updates or deletes a record
once it has been written.
"""
