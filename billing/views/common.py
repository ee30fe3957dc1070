import uuid

from rest_framework.exceptions import ValidationError


def idempotency_key(request):
    """The optional Idempotency-Key header, validated as a UUID."""
    key = request.META.get("HTTP_IDEMPOTENCY_KEY")
    if not key:
        return None
    try:
        return str(uuid.UUID(key))
    except ValueError:
        raise ValidationError({"idempotency_key": "Idempotency-Key must be a UUID."})


def client_ip(request):
    return request.META.get("REMOTE_ADDR")
