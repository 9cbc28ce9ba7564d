"""Fixed ports, images and paths shared across provisioning stages."""

PROPAGATION_SERVICE = "propagation-server"
CONTENT_SERVICE = "content-server"
INCENTIVE_SERVICE = "incentive-server"
PROXY_SERVICE = "reverse-proxy"
NETWORK_NAME = "dig_network"

PROPAGATION_PORT = 4159
INCENTIVE_PORT = 4160
CONTENT_PORT = 4161
SSH_PORT = 22
HTTP_PORT = 80
HTTPS_PORT = 443

IMAGE_REPOSITORY = "dignetwork"
DEFAULT_IMAGE_TAG = "latest-alpha"
PROXY_IMAGE = "nginx:latest"
COMPOSE_FILE_VERSION = "3.8"

CONTAINER_DIG_FOLDER = "/.dig"
CONTAINER_NGINX_CONF_DIR = "/etc/nginx/conf.d"
CONTAINER_NGINX_CERTS_DIR = "/etc/nginx/certs"

NOT_PROVIDED = "not-provided"
DEFAULT_DISK_SPACE_LIMIT_BYTES = 1099511627776

COMPOSE_FILE_NAME = "docker-compose.yml"
PROXY_ROUTE_FILE_NAME = "default.conf"
CA_CERT_FILE_NAME = "chia_ca.crt"
CA_KEY_FILE_NAME = "chia_ca.key"
CLIENT_CERT_FILE_NAME = "client.crt"
CLIENT_KEY_FILE_NAME = "client.key"
FULLCHAIN_FILE_NAME = "fullchain.pem"
PRIVKEY_FILE_NAME = "privkey.pem"
CLIENT_COMMON_NAME = "dig-nginx-client"
CLIENT_CERT_VALIDITY_DAYS = 365
CLIENT_KEY_SIZE = 2048

LETSENCRYPT_LIVE_DIR = "/etc/letsencrypt/live"
SYSTEMD_UNIT_DIR = "/etc/systemd/system"
SERVICE_NAME_TEMPLATE = "dig@{user}.service"
DOCKER_GROUP = "docker"
UNIT_STOP_TIMEOUT_SECONDS = 30
RENEWAL_SCHEDULE = "0 0 * * *"

REQUIRED_SOFTWARE = ("docker", "docker-compose", "firewalld", "certbot")

DIR_MODE = 0o755
FILE_MODE = 0o644
SECRET_FILE_MODE = 0o600
