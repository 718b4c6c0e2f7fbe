"""
Data models for dns-plugin.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional


@dataclass
class ProviderSpecificProperty:
    """
    A single provider specific name/value pair attached to an endpoint.
    """

    name: str = ""
    value: str = ""


@dataclass
class Endpoint:
    """
    Represents a DNS endpoint (record) exchanged with a plugin.

    A record_ttl of 0 means the TTL is unspecified.
    """

    dnsname: str = ""
    targets: List[str] = field(default_factory=list)
    record_type: str = ""
    set_identifier: str = ""
    record_ttl: int = 0
    labels: Dict[str, str] = field(default_factory=dict)
    provider_specific: List[ProviderSpecificProperty] = field(default_factory=list)

    @property
    def id(self) -> str:
        """
        Generate a unique identifier for this endpoint.

        Returns:
            str: Unique identifier
        """
        if self.set_identifier:
            return f"{self.dnsname}:{self.record_type}:{self.set_identifier}"
        return f"{self.dnsname}:{self.record_type}"

    def get_provider_specific_property(self, name: str) -> Optional[str]:
        """
        Returns the value of the first provider specific property with the given name.

        Args:
            name: Property name

        Returns:
            Optional[str]: Property value, or None if the endpoint does not carry it
        """
        for prop in self.provider_specific:
            if prop.name == name:
                return prop.value
        return None

    def with_provider_specific(self, name: str, value: str) -> "Endpoint":
        """
        Returns a copy of this endpoint with an extra provider specific property.
        """
        props = list(self.provider_specific)
        props.append(ProviderSpecificProperty(name=name, value=value))
        return replace(self, provider_specific=props)

    def __str__(self) -> str:
        return f"{self.dnsname} {self.record_ttl} IN {self.record_type} {self.set_identifier} {self.targets}"


@dataclass
class Changes:
    """
    Represents changes to be applied to DNS records.

    A sequence left as None is distinct from an empty one: None goes on the
    wire as null, [] as an empty array.
    """

    create: Optional[List[Endpoint]] = None
    update_old: Optional[List[Endpoint]] = None
    update_new: Optional[List[Endpoint]] = None
    delete: Optional[List[Endpoint]] = None

    def has_changes(self) -> bool:
        """
        Check if there are any changes to be applied.

        Returns:
            bool: True if there are changes, False otherwise
        """
        return bool(self.create or self.update_old or self.update_new or self.delete)


@dataclass
class PropertyComparison:
    """
    A request to compare two values of a named provider specific property.
    """

    name: str
    previous: str
    current: str
