"""
Database operations - Generic CRUD functions for all collections
"""
from typing import List, Dict, Optional
from datetime import datetime
from app.config.database import db_config

class DBOperations:
    """Generic database operations for MongoDB collections"""

    @staticmethod
    async def get_all(collection_name: str, filter_query: Dict = None, skip: int = 0, limit: int = 100,
                      sort: Optional[List] = None) -> List[Dict]:
        """Get all documents from a collection with optional filtering"""
        collection = db_config.get_collection(collection_name)
        filter_query = filter_query or {}
        cursor = collection.find(filter_query)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        documents = await cursor.to_list(length=limit)
        return documents

    @staticmethod
    async def get_one(collection_name: str, filter_query: Dict) -> Optional[Dict]:
        """Get a single document by filter query"""
        collection = db_config.get_collection(collection_name)
        document = await collection.find_one(filter_query)
        return document

    @staticmethod
    async def create(collection_name: str, document: Dict) -> Dict:
        """Create a new document"""
        collection = db_config.get_collection(collection_name)
        document.setdefault("created_at", datetime.utcnow())
        document["updated_at"] = datetime.utcnow()
        result = await collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    @staticmethod
    async def update_one(collection_name: str, filter_query: Dict, update_data: Dict) -> Optional[Dict]:
        """Update the first document matching filter_query and return it"""
        collection = db_config.get_collection(collection_name)
        update_data["updated_at"] = datetime.utcnow()
        result = await collection.find_one_and_update(
            filter_query,
            {"$set": update_data},
            return_document=True
        )
        return result

    @staticmethod
    async def delete_one(collection_name: str, filter_query: Dict) -> bool:
        """Delete the first document matching filter_query"""
        collection = db_config.get_collection(collection_name)
        result = await collection.delete_one(filter_query)
        return result.deleted_count > 0

    @staticmethod
    async def count(collection_name: str, filter_query: Dict = None) -> int:
        """Count documents in a collection"""
        collection = db_config.get_collection(collection_name)
        filter_query = filter_query or {}
        count = await collection.count_documents(filter_query)
        return count

db_ops = DBOperations()
