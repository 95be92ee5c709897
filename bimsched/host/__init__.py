"""Host document adapters.

The builder talks to the host application only through HostDocument.
"""

from bimsched.host.base import HostDocument, MutationScope
from bimsched.host.sql import SqlDocument

__all__ = ["HostDocument", "MutationScope", "SqlDocument"]
