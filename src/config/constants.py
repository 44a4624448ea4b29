"""Fleet-wide defaults for provisioning and load-testing the bookinfo fleet."""

# =============================================================================
# Fleet Layout
# =============================================================================

NUM_REPLICAS = 4
IDENTITY_WIDTH = 3        # "%03d" -> at most 999 replicas

WORK_DIR = "."
BASE_DIR = "base"
OVERLAY_DIR = "overlays"
CONFIG_DIR_NAME = "load-test-manifests"

OVERLAY_DIR_PREFIX = "overlay-"
BASE_BUNDLE_FILE = "bookinfo.yaml"
KUSTOMIZATION_FILE = "kustomization.yaml"

# =============================================================================
# Base Bundle Source
# =============================================================================

YAML_URL = (
    "https://raw.githubusercontent.com/istio/istio/release-1.24/"
    "samples/bookinfo/platform/kube/bookinfo.yaml"
)
FETCH_TIMEOUT_SECONDS = 30

# =============================================================================
# Naming
# =============================================================================

NAMESPACE = "k6-operator"
NAME_PREFIX = "bookinfo-"

# Service every load test targets (after prefix/suffix decoration)
TARGET_SERVICE = "productpage"
TARGET_PORT = 9080
TARGET_PATH = "/productpage"

CONFIGMAP_PREFIX = "k6-test-config-"
SCRIPT_FILE_PREFIX = "k6-test-"
TASK_FILE_PREFIX = "k6-task-"
TASK_NAME = "bookinfo-productpage-load-test"

# =============================================================================
# Load Profile (k6)
# =============================================================================

EXECUTOR = "ramping-vus"
SCENARIO_NAME = "ramp_up_scenario"

# (duration, target VUs)
RAMP_STAGES = [
    ("2m", 5000),     # ramp up
    ("5m", 10000),    # ramp up further
    ("10m", 10000),   # hold
    ("3m", 0),        # ramp down
]
GRACEFUL_RAMP_DOWN = "2m"

# Pass/fail thresholds handed to k6
MAX_DURATION_MS = 200
THRESHOLDS = {
    "http_req_failed": ["rate<0.01"],
    "http_req_duration": [f"p(95)<{MAX_DURATION_MS}"],
}

SUMMARY_TREND_STATS = ["min", "med", "avg", "p(90)", "p(95)", "max", "count"]

# Pods the k6-operator splits the virtual users across
PARALLELISM = 100

# =============================================================================
# Orchestration
# =============================================================================

KUBECTL = "kubectl"
STABILIZATION_SECONDS = 60
WORKERS = 1

# Exit codes: number of failed identities, capped; fatal errors get their own
MAX_FAILURE_EXIT_CODE = 124
FATAL_EXIT_CODE = 125
