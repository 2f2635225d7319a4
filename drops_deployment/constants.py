from pathlib import Path

import drops_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(drops_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
DEFAULT_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "drops.yml"

# relative to the working directory of the deployment run
DEPLOYMENTS_DIR = Path("./deployments")

MANIFEST_JSON_FORMAT = {"indent": 2}

#
# Networks
#

LOCAL_NETWORKS = ["local"]

ENV_FILE_PREFIX = ".env"

#
# Contracts
#

# logical names used as manifest keys
DROP_CONTRACT = "dropContract"
DROP_METADATA_CONTRACT = "dropMetadataContract"
CREATOR_IMPL = "creatorImpl"

ZORA_ERC_721_TRANSFER_HELPER_ADDRESS = "ZORA_ERC_721_TRANSFER_HELPER_ADDRESS"
