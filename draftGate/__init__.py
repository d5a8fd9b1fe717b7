"""DraftGate - correction gate for chat message sends on Windows.

Intercepts the send action of a chat client's composer, asks an LLM correction
service to review the draft, and when the proposed correction is significant holds
the send until the user has retyped the draft to match it (or explicitly sends it
as-is).
"""

__version__ = "1.0.0"
__author__ = "DraftGate Project"
__license__ = "MIT"

__all__ = [
    "__version__",
    "__author__",
    "__license__",
]
