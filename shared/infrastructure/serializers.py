"""Serializer helpers."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class StrictSerializerMixin:
    """Reject request bodies carrying fields the serializer does not declare."""

    def to_internal_value(self, data):  # type: ignore
        if hasattr(data, "keys"):
            allowed = {name for name, field in self.fields.items() if not field.read_only}
            unknown = sorted(set(data.keys()) - allowed)
            if unknown:
                raise serializers.ValidationError(
                    {name: ["Неизвестное поле."] for name in unknown}
                )
        return super().to_internal_value(data)
