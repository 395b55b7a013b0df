from tortoise import fields
from tortoise.models import Model
import uuid

class User(Model):
    """User account stored in SQLite database."""

    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    username = fields.CharField(max_length=50, unique=True, index=True)
    password_hash = fields.CharField(max_length=128)
    created_at = fields.DatetimeField(auto_now_add=True)
    # --- Aggregate gameplay statistics --- #
    games_played = fields.IntField(default=0)
    games_won = fields.IntField(default=0)
    times_imposter = fields.IntField(default=0)
    times_caught_imposter = fields.IntField(default=0)

    class Meta:
        table = "users"
