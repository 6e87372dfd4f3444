# Client packages
from .drive_api import DriveAPI, DriveAPIError
from .pacer import Pacer, is_transient

__all__ = ['DriveAPI', 'DriveAPIError', 'Pacer', 'is_transient']
