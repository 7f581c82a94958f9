"""
pushdeploy Constants

Centralized constants for magic values, defaults, and exit codes.
"""

# Exit codes (one per failing stage)
EXIT_OK = 0
EXIT_INVALID_INPUT = 10
EXIT_CLONE_FAILED = 20
EXIT_SSH_FAILED = 30
EXIT_PROVISION_FAILED = 40
EXIT_DEPLOY_FAILED = 50
EXIT_PROXY_FAILED = 60
EXIT_VALIDATION_FAILED = 70
EXIT_CLEANUP_FAILED = 80
EXIT_INTERRUPTED = 130

# Input defaults
DEFAULT_BRANCH = "main"
ENV_PREFIX = "PUSHDEPLOY_"

# SSH Configuration
SSH_CONNECTION_TIMEOUT = 10
SSH_CONNECTIVITY_MARKER = "SSH_OK"
SSH_FAILURE_EXIT_CODE = 255

# Source staging
ASKPASS_USERNAME = "x-access-token"
TOKEN_MASK_HEAD = 6
TOKEN_MASK_TAIL = 4

# Remote layout (relative to the remote user's home)
REMOTE_BASE_DIR = "deployments"
LOGICAL_NAME_SUFFIX = "_app"

# Manifests, in detection order
COMPOSE_FILES = [
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
]
DOCKERFILE = "Dockerfile"

# Container launch
CONTAINER_RESTART_POLICY = "unless-stopped"
CONTAINER_SETTLE_DELAY = 3
HEALTH_POLL_ATTEMPTS = 15
HEALTH_POLL_INTERVAL = 2
COMPOSE_PROJECT_LABEL = "com.docker.compose.project"
LOG_TAIL_LINES = 200

# Nginx
NGINX_DIR = "/etc/nginx"
NGINX_SITES_AVAILABLE = f"{NGINX_DIR}/sites-available"
NGINX_SITES_ENABLED = f"{NGINX_DIR}/sites-enabled"
NGINX_CONF_D = f"{NGINX_DIR}/conf.d"
NGINX_DEFAULT_SITE = "default"
PUBLIC_HTTP_PORT = 80
PROXY_READ_TIMEOUT = 90

# Validation
HTTP_PROBE_TIMEOUT = 10
HTTP_UNREACHABLE = "000"

# Log Configuration
LOG_FILE_PREFIX = "deploy"
LOG_FILE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# Remote services the provisioner ensures, in dependency order
DOCKER_INSTALL_SCRIPT_URL = "https://get.docker.com"
COMPOSE_PLUGIN_URL = "https://github.com/docker/compose/releases/latest/download"
COMPOSE_PLUGIN_DIR = "/usr/local/lib/docker/cli-plugins"
NGINX_PACKAGE = "nginx"
