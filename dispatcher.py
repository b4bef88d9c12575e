import logging
logger = logging.getLogger(__name__)

emitter_handlers = {}


def register_emitter(order, name=None):
    def decorator(func):
        emitter_handlers[order] = {
            "name": name or func.__name__,
            "handler": func,
        }
        return func
    return decorator


def registered_emitters():
    """Return (name, handler) pairs in run order."""
    return [(emitter_handlers[k]["name"], emitter_handlers[k]["handler"]) for k in sorted(emitter_handlers)]


def dispatch_emitters(records, settings):
    """
    Run every registered emitter over the same record list.
    Yields (name, artifacts) per emitter, in the fixed run order.
    """
    for name, handler in registered_emitters():
        logger.debug(f"Dispatching {name}")
        artifacts = handler(records, settings)
        logger.info(f"{name}: {len(artifacts)} artifact(s)")
        yield name, artifacts


def get_emitter_name(order):
    entry = emitter_handlers.get(order)
    if entry:
        return entry["name"]
    return f"Unknown ({order})"
