"""Shared constants for EMR Bootstrap."""

CONNECT_TIMEOUT_SECONDS = 15

MODULE_SUFFIX = ".omod"
MODULE_TEMP_PREFIX = "modules"
DUMP_TEMP_PREFIX = "test-data-"
DUMP_TEMP_SUFFIX = ".sql"

DEFAULT_MYSQL_CLIENT = "mysql"
DEFAULT_CONFIG_FILE = ".emrbootstrap.yml"

RELEASE_TESTING_MODULE_PATH = "module/releasetestinghelper/"
DEFAULT_MODULES_PATH = RELEASE_TESTING_MODULE_PATH + "getModules.htm"
DEFAULT_DATA_PATH = RELEASE_TESTING_MODULE_PATH + "generateTestDataSet.form"

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

REDACTED = "******"

DIR_MODE = 0o755
FILE_MODE = 0o644
