""" netiface - look up IP addresses by interface name and interface names by IP

    Every call reads a fresh snapshot of the host interfaces through
    getifaddrs and filters it by address family and internal
    (loopback) scope. Nothing is cached between calls.
"""

import collections

from ifquery.custlogging import get_logger, WARNING
from ifquery.errors import (InterfaceNotFound, NoMatchingAddress,
                            NoMatchingInterface, InvalidOptions)
from ifquery.getifaddrs import (get_network_interfaces, AddressEntry,
                                FAMILY_IPV4, FAMILY_IPV6)

logger = get_logger(__name__, WARNING)

IP_VERSIONS = { 4: FAMILY_IPV4,
                6: FAMILY_IPV6,
              }


def check_fields(internal, ip_version):
    """ raise InvalidOptions unless both filter fields are None or valid """

    if internal is not None and not isinstance(internal, bool):
        raise InvalidOptions("internal must be a boolean, not '%s'"
                             % type(internal).__name__)

    # exact int: bools and floats are rejected
    if ip_version is not None and (type(ip_version) is not int or
                                   ip_version not in IP_VERSIONS):
        raise InvalidOptions("ip_version must be 4 or 6, not %r" % (ip_version,))


class FilterOptions(collections.namedtuple("FilterOptions", "internal ip_version")):
    """ Address filter. A field left to None places no constraint

        internal:   True for internal (loopback) addresses only,
                    False for external ones only
        ip_version: 4 or 6 to keep a single address family
    """

    __slots__ = ()

    def __new__(cls, internal=None, ip_version=None):

        check_fields(internal, ip_version)

        return super().__new__(cls, internal, ip_version)

NO_FILTER = FilterOptions()


def check_options(options):
    """ validate 'options' at the boundary. None means no filter
        fields are checked again: _make() and _replace() skip __new__ """

    if options is None:
        return NO_FILTER

    if not isinstance(options, FilterOptions):
        raise InvalidOptions("options must be a FilterOptions instance, not '%s'"
                             % type(options).__name__)

    check_fields(options.internal, options.ip_version)

    return options

def matches(entry: AddressEntry, options: FilterOptions=None) -> bool:
    """ return True if the address entry satisfies every constraint set """

    options = check_options(options)

    if options.internal is not None and entry.internal != options.internal:
        return False

    if options.ip_version is not None and entry.family != IP_VERSIONS[options.ip_version]:
        return False

    return True

def find_addresses(ifname: str,
                   options: FilterOptions=None,
                   ifmap: dict=None) -> list[AddressEntry]:
    """ return the (possibly empty) list of entries on interface 'ifname'
        that satisfy the filter, in the order the OS reports them
        raise InterfaceNotFound if there is no interface with such a name """

    options = check_options(options)

    if ifmap is None:
        ifmap = get_network_interfaces()

    if ifname not in ifmap:
        raise InterfaceNotFound(ifname)

    return [entry for entry in ifmap[ifname] if matches(entry, options)]

def to_ip(ifname: str, options: FilterOptions=None) -> str:
    """ the first address on interface 'ifname' that passes the filter """

    addrlist = find_addresses(ifname, options)

    if not addrlist:
        raise NoMatchingAddress(ifname)

    logger.debug("%s -> %s", ifname, addrlist[0].address)

    return addrlist[0].address

def to_ips(ifname: str, options: FilterOptions=None) -> list[str]:
    """ all the addresses on interface 'ifname' that pass the filter """

    return [entry.address for entry in find_addresses(ifname, options)]

def from_ip(ip: str, options: FilterOptions=None) -> str:
    """ name of the first interface holding address 'ip'
        addresses are compared as strings, no normalization is done """

    options = check_options(options)

    for ifname, entries in get_network_interfaces().items():
        for entry in entries:
            if entry.address == ip and matches(entry, options):
                logger.debug("%s -> %s", ip, ifname)
                return ifname

    raise NoMatchingInterface(ip)

def get_interfaces(options: FilterOptions=None) -> list[str]:
    """ names of the interfaces with at least one address passing the filter """

    options = check_options(options)

    ifmap = get_network_interfaces()

    return [ifname for ifname in ifmap if find_addresses(ifname, options, ifmap)]

__all__ = ["FilterOptions", "matches", "find_addresses",
           "to_ip", "to_ips", "from_ip", "get_interfaces"]

if __name__ == '__main__':

    import sys
    import argparse

    from ifquery.errors import InterfaceQueryError
    #
    # Command line option and argument parsing
    #
    argp = argparse.ArgumentParser(description='list interface addresses matching a filter')
    argp.add_argument('-v', '--version', action='version', version='netiface version 1.0')
    fam = argp.add_mutually_exclusive_group()
    fam.add_argument('-4', dest='ip_version', action='store_const', const=4,
                help='IPv4 addresses only')
    fam.add_argument('-6', dest='ip_version', action='store_const', const=6,
                help='IPv6 addresses only')
    scp = argp.add_mutually_exclusive_group()
    scp.add_argument('--internal', dest='internal', action='store_const', const=True,
                help='internal (loopback) addresses only')
    scp.add_argument('--external', dest='internal', action='store_const', const=False,
                help='external addresses only')
    argp.add_argument('interface', nargs='?', help='interface name')
    opts = argp.parse_args()

    try:
        filt = FilterOptions(internal=opts.internal, ip_version=opts.ip_version)
        if opts.interface:
            for addr in to_ips(opts.interface, filt):
                print(addr)
        else:
            ifmap = get_network_interfaces()
            for ifname in ifmap:
                for entry in find_addresses(ifname, filt, ifmap):
                    print("%s %s" % (ifname, entry.address))
    except InterfaceQueryError as excp:
        print("netiface: %s" % excp, file=sys.stderr)
        sys.exit(1)
