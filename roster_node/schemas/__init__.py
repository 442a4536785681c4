from roster_node.schemas.payload_contracts import (
    AuthRequest,
    BulkUpsertEnvelope,
    PlayerFieldsPatch,
    PlayerUpsertEnvelope,
    TivEnvelope,
    TokenResponse,
    bulk_result_to_dict,
    field_view_to_dict,
    player_to_dict,
    snapshot_to_dict,
    upsert_result_to_dict,
)

__all__ = [
    "AuthRequest",
    "BulkUpsertEnvelope",
    "PlayerFieldsPatch",
    "PlayerUpsertEnvelope",
    "TivEnvelope",
    "TokenResponse",
    "bulk_result_to_dict",
    "field_view_to_dict",
    "player_to_dict",
    "snapshot_to_dict",
    "upsert_result_to_dict",
]
