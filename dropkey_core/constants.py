# dropkey_core/constants.py

PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64

# Maximum paste lifetime: 7 days
MAX_TTL_SECONDS = 7 * 24 * 60 * 60

DEFAULT_CREDENTIAL_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CREDENTIAL_ISSUER = "dropkey"
CREDENTIAL_ALGORITHM = "HS256"

DEFAULT_DB_PATH = "db/dropkey.db"
DEFAULT_BASE_URL = "https://yourpastebin.com"

IDENTITIES_TABLE = "identities"
PASTES_TABLE = "pastes"

ENV_PREFIX = "DROPKEY_"
