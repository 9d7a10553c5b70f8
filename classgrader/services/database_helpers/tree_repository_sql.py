# /classgrader/services/database_helpers/tree_repository_sql.py

"""
This module contains all the raw SQLAlchemy queries against the `tree_nodes`
table. It is the direct interface to the database for the hierarchical store;
callers own the session and therefore the transaction boundary.
"""

from typing import Any, Dict, List, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...db.models.tree_node_models import TreeNode
from .tree_paths import ancestor_paths, flatten


class TreeRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def _subtree_filter(self, path: str):
        return or_(
            TreeNode.path == path,
            TreeNode.path.startswith(path + "/", autoescape=True),
        )

    # --- Reads ---

    def get_leaves(self, path: str) -> List[Tuple[str, Any]]:
        """All leaf rows at or below `path`, ordered by path."""
        query = self.db.query(TreeNode.path, TreeNode.value)
        if path:
            query = query.filter(self._subtree_filter(path))
        return [(row.path, row.value) for row in query.order_by(TreeNode.path).all()]

    def has_subtree(self, path: str) -> bool:
        query = self.db.query(TreeNode.path)
        if path:
            query = query.filter(self._subtree_filter(path))
        return query.first() is not None

    # --- Writes ---

    def delete_subtree(self, path: str) -> int:
        query = self.db.query(TreeNode)
        if path:
            query = query.filter(self._subtree_filter(path))
        return query.delete(synchronize_session=False)

    def delete_ancestor_leaves(self, path: str) -> int:
        """A scalar stored above `path` would shadow the new subtree, so it goes."""
        ancestors = ancestor_paths(path)
        if not ancestors:
            return 0
        return self.db.query(TreeNode).filter(TreeNode.path.in_(ancestors)).delete(synchronize_session=False)

    def insert_leaves(self, leaves: Dict[str, Any]) -> None:
        self.db.add_all([TreeNode(path=leaf_path, value=value) for leaf_path, value in leaves.items()])

    def replace_subtree(self, path: str, value: Any) -> None:
        """Makes `value` the complete content of `path` (None removes it)."""
        self.delete_subtree(path)
        if path:
            self.delete_ancestor_leaves(path)
        self.insert_leaves(flatten(value, path))
        self.db.flush()
