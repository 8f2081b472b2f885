# Security Rule Configuration for nsgallow
# Provider: Upbound provider-azure (network.azure.upbound.io)
# Output: one SecurityRule per NSG, allowing published IPv4 ranges inbound

# Address range source
ADDRESS_RANGES_URL = "https://www.cloudflare.com/ips-v4/#"

# Matches dotted quads only; octets are not range checked
IPV4_PATTERN = r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b"

# Fetch policy
DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_FETCH_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5
RETRY_STATUS_CODES = [429, 500, 502, 503, 504]

# Composite resource field holding the network security group name
NSG_NAME_FIELD = "spec.nsgName"

# Desired composed resource names are prefixed to avoid collisions with
# other composed resources in the desired map
RESOURCE_NAME_PREFIX = "xbuckets-"

# Composed resource type
SECURITY_RULE_API_VERSION = "network.azure.upbound.io/v1beta1"
SECURITY_RULE_KIND = "SecurityRule"

EXTERNAL_NAME_ANNOTATION = "crossplane.io/external-name"
EXTERNAL_NAME = "cloudflare-ip-allow"

# Fixed spec.forProvider fields
RULE_ACCESS = "Allow"
RULE_DESTINATION_ADDRESS_PREFIX = "20.100.33.77"
RULE_DIRECTION = "Inbound"
RULE_PRIORITY = 100
RULE_PROTOCOL = "Tcp"
RULE_SOURCE_PORT_RANGE = "443"
