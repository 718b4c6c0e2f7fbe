"""
Record codec module for dns-plugin.

This module maps endpoints and change sets to and from the JSON documents
exchanged with a plugin. Encoding emits compact JSON with a fixed field order
and omits empty optional fields. Decoding ignores unknown fields and raises
ValueError for anything that is not valid JSON of the expected shape.
"""

import json
from typing import Any, Dict, List, Optional, Union

from dns_plugin.models.models import (
    Changes,
    Endpoint,
    PropertyComparison,
    ProviderSpecificProperty,
)

Body = Union[str, bytes]

# Wire names of the change set sequences, in wire order
CHANGES_FIELDS = (
    ("Create", "create"),
    ("UpdateOld", "update_old"),
    ("UpdateNew", "update_new"),
    ("Delete", "delete"),
)


def _dumps(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def endpoint_to_dict(endpoint: Endpoint) -> Dict[str, Any]:
    """
    Convert an endpoint to its wire representation.

    Args:
        endpoint: Endpoint to convert

    Returns:
        Dict[str, Any]: Wire fields, in wire order, with empty fields omitted
            and label keys sorted
    """
    data: Dict[str, Any] = {}
    if endpoint.dnsname:
        data["dnsName"] = endpoint.dnsname
    if endpoint.targets:
        data["targets"] = list(endpoint.targets)
    if endpoint.record_type:
        data["recordType"] = endpoint.record_type
    if endpoint.set_identifier:
        data["setIdentifier"] = endpoint.set_identifier
    if endpoint.record_ttl:
        data["recordTTL"] = endpoint.record_ttl
    if endpoint.labels:
        data["labels"] = dict(sorted(endpoint.labels.items()))
    if endpoint.provider_specific:
        data["providerSpecific"] = [
            {"name": prop.name, "value": prop.value}
            for prop in endpoint.provider_specific
        ]
    return data


def _expect(value: Any, kind: type, field_name: str) -> Any:
    # bool is an int subclass, but true/false is never a valid TTL
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(
            f"cannot decode {type(value).__name__} into field {field_name} of type {kind.__name__}"
        )
    return value


def _string(value: Any, field_name: str) -> str:
    # null strings decode to the empty string
    if value is None:
        return ""
    return _expect(value, str, field_name)


def _string_list(value: Any, field_name: str) -> List[str]:
    return [_string(item, field_name) for item in _expect(value, list, field_name)]


def endpoint_from_dict(data: Any) -> Endpoint:
    """
    Build an endpoint from its wire representation.

    Unknown fields are ignored and null fields are treated as absent, so an
    object with no known fields yields an empty endpoint. Null strings inside
    targets, labels and provider-specific properties decode to "".

    Args:
        data: Decoded JSON object

    Returns:
        Endpoint: Decoded endpoint
    """
    _expect(data, dict, "Endpoint")
    endpoint = Endpoint()

    if data.get("dnsName") is not None:
        endpoint.dnsname = _expect(data["dnsName"], str, "Endpoint.dnsName")
    if data.get("targets") is not None:
        endpoint.targets = _string_list(data["targets"], "Endpoint.targets")
    if data.get("recordType") is not None:
        endpoint.record_type = _expect(data["recordType"], str, "Endpoint.recordType")
    if data.get("setIdentifier") is not None:
        endpoint.set_identifier = _expect(
            data["setIdentifier"], str, "Endpoint.setIdentifier"
        )
    if data.get("recordTTL") is not None:
        endpoint.record_ttl = _expect(data["recordTTL"], int, "Endpoint.recordTTL")
    if data.get("labels") is not None:
        labels = _expect(data["labels"], dict, "Endpoint.labels")
        endpoint.labels = {
            key: _string(value, "Endpoint.labels")
            for key, value in labels.items()
        }
    if data.get("providerSpecific") is not None:
        for item in _expect(data["providerSpecific"], list, "Endpoint.providerSpecific"):
            _expect(item, dict, "Endpoint.providerSpecific")
            endpoint.provider_specific.append(
                ProviderSpecificProperty(
                    name=_string(item.get("name"), "ProviderSpecificProperty.name"),
                    value=_string(item.get("value"), "ProviderSpecificProperty.value"),
                )
            )

    return endpoint


def encode_endpoints(endpoints: List[Endpoint]) -> str:
    """
    Encode a list of endpoints as a JSON array.
    """
    return _dumps([endpoint_to_dict(endpoint) for endpoint in endpoints])


def encode_changes(changes: Optional[Changes]) -> str:
    """
    Encode a change set.

    Unset sequences are written as null and empty ones as [], and a missing
    change set is written as the JSON literal null.

    Args:
        changes: Changes to encode

    Returns:
        str: JSON document
    """
    if changes is None:
        return _dumps(None)

    data: Dict[str, Optional[List[Dict[str, Any]]]] = {}
    for wire_name, attr in CHANGES_FIELDS:
        endpoints = getattr(changes, attr)
        data[wire_name] = (
            None
            if endpoints is None
            else [endpoint_to_dict(endpoint) for endpoint in endpoints]
        )
    return _dumps(data)


def encode_property_comparison(comparison: PropertyComparison) -> str:
    return _dumps(
        {
            "name": comparison.name,
            "previous": comparison.previous,
            "current": comparison.current,
        }
    )


def decode_endpoints(body: Body) -> List[Endpoint]:
    """
    Decode a JSON array of endpoints.

    Args:
        body: Response body

    Returns:
        List[Endpoint]: One endpoint per array element, in order

    Raises:
        ValueError: If the body is not valid JSON or not an array of objects
    """
    data = json.loads(body)
    # A null document decodes to no endpoints
    if data is None:
        return []
    return [endpoint_from_dict(item) for item in _expect(data, list, "[]Endpoint")]


def decode_equals(body: Body) -> bool:
    """
    Decode a property comparison response.

    Raises:
        ValueError: If the body is not an object with a boolean equals field
    """
    data = _expect(json.loads(body), dict, "PropertyValuesEqualResponse")
    if "equals" not in data:
        raise ValueError("missing field equals in PropertyValuesEqualResponse")
    return _expect(data["equals"], bool, "PropertyValuesEqualResponse.equals")
