"""Serializers for the properties domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Property


class PropertySerializer(serializers.ModelSerializer):
    class Meta:
        model = Property
        fields = [
            "id",
            "owner",
            "title",
            "description",
            "location",
            "latitude",
            "longitude",
            "price_per_night",
            "max_guests",
            "bedrooms",
            "bathrooms",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields
