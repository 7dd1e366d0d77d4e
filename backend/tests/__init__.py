# Pharmacy inventory test suite
#
# Service tests run on an in-memory store; route and CLI tests run on
# in-memory SQLite through the Flask app.
