# /classgrader/db/base.py

# Central registry for all SQLAlchemy models. Importing them here ensures that
# Base.metadata knows about every table before `create_tables` runs.

from .database import Base
from .models.tree_node_models import TreeNode
