ENGINE_VERSION = "1.0.0"

PATH_SEPARATOR = "."
ROOT_PATH_LABEL = "(root)"

DEFAULT_INDENT_UNIT = "  "
DEFAULT_NEWLINE = "\n"
CANONICAL_INDENT = 2
CANONICAL_SORT_KEYS = True
# Separators used when a container was written on a single line.
INLINE_ITEM_SEPARATOR = ", "
INLINE_KEY_SEPARATOR = ": "

# Baselines (parsed original text + scanned layout) kept per process.
BASELINE_CACHE_SIZE = 32

SETTINGS_FILENAME = "confedit_settings.json"
SETTINGS_PATH_ENV = "CONFEDIT_SETTINGS"

DIAG_LOGGER_NAME = "confedit"
DIAG_LOG_FILENAME = "confedit_diagnostics.log"
DIAG_LOG_KEEP_DAYS = 2
DIAG_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Type names accepted in schema "type" facets, normalized to JSON Schema names.
SCHEMA_TYPE_ALIASES = {
    "string": "string",
    "integer": "integer",
    "int": "integer",
    "number": "number",
    "float": "number",
    "boolean": "boolean",
    "bool": "boolean",
    "null": "null",
    "array": "array",
    "object": "object",
}

EMAIL_FORMAT_PATTERN = r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}"
TIME_FORMAT_PATTERN = r"([01]\d|2[0-3]):([0-5]\d):([0-5]\d)"
DATE_TIME_FORMAT_PATTERN = (
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)

UTF8_BOM = "\ufeff"
