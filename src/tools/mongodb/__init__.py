"""MongoDB tools"""

from src.tools.mongodb.aggregate import AggregateTool
from src.tools.mongodb.collection_indexes import CollectionIndexesTool
from src.tools.mongodb.connect import ConnectTool
from src.tools.mongodb.create_index import CreateIndexTool
from src.tools.mongodb.drop_index import DropIndexTool
from src.tools.mongodb.insert_many import InsertManyTool
from src.tools.mongodb.list_search_indexes import ListSearchIndexesTool

MONGODB_TOOLS = [
    ConnectTool,
    InsertManyTool,
    CreateIndexTool,
    DropIndexTool,
    CollectionIndexesTool,
    ListSearchIndexesTool,
    AggregateTool,
]

__all__ = [
    "MONGODB_TOOLS",
    "AggregateTool",
    "CollectionIndexesTool",
    "ConnectTool",
    "CreateIndexTool",
    "DropIndexTool",
    "InsertManyTool",
    "ListSearchIndexesTool",
]
