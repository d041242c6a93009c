SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "school_portal_test",
}

MESSAGE_STORE = "memory"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
