"""Constants shared across the deploy helpers and the dispenser client."""

from typing import Final

# ---------------------------------------------------------------------------
# AVM constants
# ---------------------------------------------------------------------------
APP_PAGE_MAX_SIZE: Final[int] = 2048
MAX_EXTRA_PROGRAM_PAGES: Final[int] = 3


# ---------------------------------------------------------------------------
# ARC-2 constants
# ---------------------------------------------------------------------------
ARC2_DATA_FORMAT_JSON: Final[bytes] = b"j"
ARC2_SEPARATOR: Final[bytes] = b":"

# Deployment note dApp name, keeps notes compatible with AlgoKit deployments.
DEPLOYER_DAPP_NAME: Final[bytes] = b"ALGOKIT_DEPLOYER"
DEPLOYMENT_NOTE_PREFIX: Final[bytes] = (
    DEPLOYER_DAPP_NAME + ARC2_SEPARATOR + ARC2_DATA_FORMAT_JSON
)


# ---------------------------------------------------------------------------
# TEAL template constants
# ---------------------------------------------------------------------------
TEMPLATE_PREFIX: Final[str] = "TMPL_"
UPDATABLE_TEMPLATE_NAME: Final[str] = TEMPLATE_PREFIX + "UPDATABLE"
DELETABLE_TEMPLATE_NAME: Final[str] = TEMPLATE_PREFIX + "DELETABLE"


# ---------------------------------------------------------------------------
# Indexer constants
# ---------------------------------------------------------------------------
INDEXER_NEXT_TOKEN: Final[str] = "next-token"
APPL_TXN_TYPE: Final[str] = "appl"


# ---------------------------------------------------------------------------
# TestNet dispenser constants
# ---------------------------------------------------------------------------
DISPENSER_BASE_URL: Final[str] = "https://api.dispenser.algorandfoundation.tools"
DISPENSER_REQUEST_TIMEOUT: Final[int] = 15  # seconds
DISPENSER_ACCESS_TOKEN_KEY: Final[str] = "ALGOKIT_DISPENSER_ACCESS_TOKEN"
