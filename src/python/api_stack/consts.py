"""System defaults for api_stack service definitions."""

from pathlib import Path

# Repository root; local build contexts and job code paths resolve against it
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Base path for service definitions and deploy settings
SERVICES_BASE_PATH = PROJECT_ROOT / "services"
CONFIG_PATH = SERVICES_BASE_PATH / "config.yaml"

# Cluster / container defaults
DEFAULT_CLUSTER_NAME = "api-stack-cluster"
DEFAULT_API_CONTAINER_NAME = "api"
DEFAULT_API_CONTAINER_PORT = 8080
DEFAULT_CONTAINER_ESSENTIAL = True

# Capacity mixture weights (spot / on-demand)
DEFAULT_SPOT_WEIGHT = 1
DEFAULT_ONDEMAND_WEIGHT = 0

# Availability zone breadth
BOUNDED_AZ_COUNT = 3
ALL_AZ_COUNT = 99

# Target tracking thresholds used when a policy omits its own
DEFAULT_TARGET_UTILIZATION_PERCENT = 65
DEFAULT_SCALE_IN_COOLDOWN_SECONDS = 240
DEFAULT_SCALE_OUT_COOLDOWN_SECONDS = 120

# Logical reference to the load balancer target group of the API service
API_TARGET_GROUP = "api-target-group"

# Seconds to wait on `docker version` before treating docker as unavailable
TOOLCHAIN_CHECK_TIMEOUT_SECONDS = 10

# Tag that external build tooling pushes local images under
LOCAL_IMAGE_TAG = "latest"
