# Importing the modules registers their emitters with the dispatcher.
from emitters import devices, users, routing, gateway  # noqa: F401
from emitters.generic import Artifact

__all__ = ["Artifact", "devices", "users", "routing", "gateway"]
