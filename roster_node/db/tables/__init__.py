from roster_node.db.tables.players import PlayerRow, PlayerSnapshotRow

__all__ = [
    "PlayerRow",
    "PlayerSnapshotRow",
]
