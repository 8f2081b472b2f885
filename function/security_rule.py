"""
Security rule model for nsgallow.

Builds the desired Azure network SecurityRule composed resource. Every field
except the NSG name and the source address prefixes is fixed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

import function.nsg_config as nsg_config


def resource_name(nsg_name: str) -> str:
    """Return the desired composed resource name for an NSG.

    The name only depends on the NSG name so that repeated runs overwrite the
    same entry in the desired map.
    """
    return nsg_config.RESOURCE_NAME_PREFIX + nsg_name


@dataclass(frozen=True)
class SecurityRule:
    """
    Inbound allow rule for one network security group.

    Args:
        nsg_name: Network security group the rule belongs to
        source_address_prefixes: Allowed source addresses, in source order
    """

    nsg_name: str
    source_address_prefixes: Tuple[str, ...] = field(default_factory=tuple)
    access: str = nsg_config.RULE_ACCESS
    destination_address_prefix: str = nsg_config.RULE_DESTINATION_ADDRESS_PREFIX
    direction: str = nsg_config.RULE_DIRECTION
    priority: int = nsg_config.RULE_PRIORITY
    protocol: str = nsg_config.RULE_PROTOCOL
    source_port_range: str = nsg_config.RULE_SOURCE_PORT_RANGE

    @classmethod
    def for_nsg(cls, nsg_name: str, addresses: Sequence[str]) -> "SecurityRule":
        return cls(nsg_name=nsg_name, source_address_prefixes=tuple(addresses))

    @property
    def name(self) -> str:
        return resource_name(self.nsg_name)

    def to_resource(self) -> Dict[str, Any]:
        """Render the rule as a composed resource manifest."""
        return {
            "apiVersion": nsg_config.SECURITY_RULE_API_VERSION,
            "kind": nsg_config.SECURITY_RULE_KIND,
            "metadata": {
                "annotations": {
                    nsg_config.EXTERNAL_NAME_ANNOTATION: nsg_config.EXTERNAL_NAME,
                },
            },
            "spec": {
                "forProvider": {
                    "access": self.access,
                    "destinationAddressPrefix": self.destination_address_prefix,
                    "direction": self.direction,
                    "networkSecurityGroupName": self.nsg_name,
                    "priority": self.priority,
                    "protocol": self.protocol,
                    "sourceAddressPrefixes": list(self.source_address_prefixes),
                    "sourcePortRange": self.source_port_range,
                },
            },
        }
