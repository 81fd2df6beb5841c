from rest_framework import serializers


class StrictFieldsMixin:
    """
    Reject payload keys the serializer does not declare instead of
    silently dropping them.
    """

    def to_internal_value(self, data):
        if hasattr(data, "keys"):
            unknown = sorted(set(data.keys()) - set(self.fields))
            if unknown:
                raise serializers.ValidationError(
                    {name: ["Unknown field."] for name in unknown}
                )
        return super().to_internal_value(data)
