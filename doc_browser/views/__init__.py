from .table_view import (
    AggregateTableView,
    ClusterCountTable,
    DocumentCountTable,
    LanguageCountTable,
    TextLengthTable,
    WorldMapTable,
    register_table_views,
)

__all__ = [
    "AggregateTableView",
    "ClusterCountTable",
    "DocumentCountTable",
    "LanguageCountTable",
    "TextLengthTable",
    "WorldMapTable",
    "register_table_views",
]
