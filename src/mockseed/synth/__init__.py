"""Value synthesizers, one per schema backend."""

from mockseed.synth.client import (
    SchemaSynthesizer,
    generate_value_by_type,
    infer_type_from_field_name,
    infer_value_by_field_name,
)
from mockseed.synth.openapi import OpenAPISynthesizer
from mockseed.synth.proto import ProtoSynthesizer

__all__ = [
    "OpenAPISynthesizer",
    "ProtoSynthesizer",
    "SchemaSynthesizer",
    "generate_value_by_type",
    "infer_type_from_field_name",
    "infer_value_by_field_name",
]
