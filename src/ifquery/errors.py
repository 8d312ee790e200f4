""" exceptions raised by interface queries """

from os import strerror


class InterfaceQueryError(Exception):
    """ Base class for all interface query errors """


class InterfaceNotFound(InterfaceQueryError, LookupError):
    """ the requested interface is not in the OS interface list """

    def __init__(self, ifname):

        super().__init__('Network interface "%s" does not exist' % ifname)
        self.ifname = ifname


class NoMatchingAddress(InterfaceQueryError, LookupError):
    """ the interface exists but none of its addresses passes the filter """

    def __init__(self, ifname):

        super().__init__('No suitable IP address found on interface "%s"' % ifname)
        self.ifname = ifname


class NoMatchingInterface(InterfaceQueryError, LookupError):
    """ no interface holds the address with the given filter """

    def __init__(self, ip):

        super().__init__('No suitable interfaces were found with IP address "%s"' % ip)
        self.ip = ip


class PlatformQueryFailed(InterfaceQueryError, OSError):
    """ the OS interface list could not be obtained """

    def __init__(self, reason, errno=None):

        if errno:
            super().__init__(errno, "%s: %s" % (reason, strerror(errno)))
        else:
            super().__init__(reason)


class InvalidOptions(InterfaceQueryError, ValueError, TypeError):
    """ malformed filter options """
