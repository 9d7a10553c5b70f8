# /classgrader/db/models/tree_node_models.py

"""
This module defines the single SQLAlchemy model backing the hierarchical
store. The tree (professors/{profId}/classes/{classId}/...) is flattened so
that every scalar value lives in its own row, addressed by its full slash
separated path. Subtrees are read and removed with a path-prefix query.
"""

from sqlalchemy import Column, String, JSON

from ..database import Base


class TreeNode(Base):
    """One leaf of the hierarchical store."""
    __tablename__ = "tree_nodes"

    path = Column(String, primary_key=True, index=True)
    value = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<TreeNode(path='{self.path}', value={self.value!r})>"
