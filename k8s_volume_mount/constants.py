"""Module defining various global constants."""

# k8s-volume-mount version
VERSION = "1.0.0"

# Format version of the persisted session metadata.
# The major version must match for a record to be loaded.
METADATA_VERSION = "1.0.0"

# Exit code for when k8s-volume-mount itself fails.
ERROR_CODE = 1

# Local port range scanned for port forwarding
PORT_RANGE_START = 10000
PORT_RANGE_END = 10100

# Default locations, overridable with a config file or environment variables
DEFAULT_TEMP_DIR = "/tmp/k8s-volume-mount"
DEFAULT_MOUNT_BASE_DIR = "k8s-mounts"
DEFAULT_CONFIG_PATH = "~/.k8s-volume-mount/config"

TEMP_DIR_ENV = "K8S_VOLUME_MOUNT_TEMP_DIR"
MOUNT_DIR_ENV = "K8S_VOLUME_MOUNT_MOUNT_DIR"

# The tunnel always connects to the loopback interface.
LOCAL_HOSTNAME = "127.0.0.1"

# Port that the file server listens on inside the cluster
REMOTE_PORT = 8090

# Container image running the file server
SERVER_IMAGE = "rclone/rclone:latest"

# Seconds to wait for the in-cluster deployment to become available
DEPLOYMENT_READY_TIMEOUT = 60

# Milliseconds to wait for the port forward to become connectable
PORT_FORWARD_TIMEOUT = 2000

# Seconds to wait for a FUSE mount process to attach
MOUNT_ATTACH_TIMEOUT = 10

# Install hint shown when no mount tool is available
RCLONE_INSTALL_URL = "https://rclone.org/install/"

# Install hint shown when kubectl cannot be found
KUBECTL_INSTALL_URL = "https://kubernetes.io/docs/tasks/tools/"
