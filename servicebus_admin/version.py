from importlib.metadata import version

__version__ = version("servicebus-admin")
