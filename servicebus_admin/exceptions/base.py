class BaseManagementError(Exception):
    pass
