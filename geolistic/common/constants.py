"""Application constants."""

USER_AGENT = "geolistic/0.3 (+https://www.geonames.org/export/)"
DEFAULT_DOWNLOAD_URL = "https://download.geonames.org/export/dump/{filename}"
COUNTRY_INFO_FILENAME = "countryInfo.txt"
DEFAULT_ELASTIC_URL = "http://127.0.0.1:9200"
DEFAULT_ELASTIC_PATH = "geonames"
DEFAULT_BUFFER_RECORDS = 1000
DEFAULT_PARALLEL_DOWNLOADS = 2
TEST_COUNTRY_CODE = "00"
FIXTURE_COUNTRY_CODE = "NU"
COMMANDS = (
    "download",
    "add",
    "sync",
    "countries",
)
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "country",
    "event",
    "status",
    "wave",
    "files",
    "records_processed",
    "records_added",
    "duration_ms",
    "error_code",
    "message",
)
