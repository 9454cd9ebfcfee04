from pathlib import Path

import dkg_deploy

#
# Filesystem
#

DEPLOYMENT_DIR = Path(dkg_deploy.__file__).parent
UNITS_DIR = DEPLOYMENT_DIR / "configs"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL_NETWORKS = ["local", "hardhat", "foundry", "anvil"]

#
# Units file keys
#

UNITS_KEY = "units"
TAGS_KEY = "tags"
DEPENDENCIES_KEY = "dependencies"
CONTRACT_TYPE_KEY = "contract_type"
CONSTRUCTOR_KEY = "constructor"
PARAMETERS_KEY = "parameters"

#
# Execution stages
#

DEPLOY_STAGE = "deploy"
CONFIGURE_STAGE = "configure"

STANDARD_LEDGER_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}
