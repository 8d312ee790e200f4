"""  getifaddrs - Read the host interface list into a name -> addresses mapping

     Walks the list returned by libc getifaddrs(3) and keeps, for every
     interface that is up and running, its IPv4 and IPv6 addresses in the
     order the OS reports them. Link layer entries only contribute the
     interface MAC address.
     Only Linux and MacOS are supported.
"""

########################################
#
# Imports and basic symbol definitions
#
########################################
import sys
import collections

from socket import AF_INET, AF_INET6, inet_ntop

from ifquery.custlogging import get_logger, WARNING
from ifquery.errors import PlatformQueryFailed

logger = get_logger(__name__, WARNING)

IS_DARWIN = sys.platform == 'darwin'
IS_LINUX  = sys.platform.startswith('linux')
IS_SUPPORTED = IS_DARWIN or IS_LINUX

# common symbol for L2 address family
if IS_DARWIN:
    from socket import AF_LINK
    LOCAL_AF_L2 = AF_LINK
elif IS_LINUX:
    from socket import AF_PACKET
    LOCAL_AF_L2 = AF_PACKET
else:
    LOCAL_AF_L2 = None

from ctypes import (
    Structure, POINTER,
    pointer, get_errno, cast,
    c_byte, c_ushort, c_int, c_uint,
    c_void_p, c_char_p,
    c_uint8, c_uint16, c_uint32
)
import ctypes.util
import ctypes

######################################################################
#
# Symbols and mappings
#
######################
# interface flags
#
IFF_UP          = 0x0001
IFF_BROADCAST   = 0x0002
IFF_LOOPBACK    = 0x0008
IFF_RUNNING     = 0x0040

# address family names, as reported in AddressEntry.family
#
FAMILY_IPV4 = "IPv4"
FAMILY_IPV6 = "IPv6"

familymap = { AF_INET:  FAMILY_IPV4,
              AF_INET6: FAMILY_IPV6,
            }

#
# Assume one-byte per char encoding for interface names
#
GETIFADDRS_ENCODING = 'ISO-8859-1'

##################################
# macro-style short functions
#
def isactive(flags):
    """ return True if the interface is both up and running """

    return bool(flags & IFF_UP) and bool(flags & IFF_RUNNING)

def isloop(flags):
    """ return True if the interface is a loopback one """

    return bool(flags & IFF_LOOPBACK)

def islayer2(fam):
    """ return True if address family is link layer """

    return LOCAL_AF_L2 is not None and fam == LOCAL_AF_L2

def print_macaddress(addr):
    """ Format as a colon separated MAC address
        Skip all-zero addresses """

    if not any(addr):
        return ""

    return ":".join(["%02x" % b for b in addr])

#####################################################
#
# C data structures
#
#   generic sockaddr structure
#
class struct_sockaddr(Structure):
    if IS_DARWIN:
        _fields_ = [
            ('sa_len',    c_uint8),
            ('sa_family', c_uint8),
            ('sa_data',   c_byte * 14),]
    else:
        _fields_ = [
            ('sa_family', c_ushort),
            ('sa_data',   c_byte * 14),]

# sockaddr structures for IPv4 and IPv6 addresses
#
class struct_sockaddr_in(Structure):
    if IS_DARWIN:
        _fields_ = [
            ('sin_len',    c_uint8),
            ('sin_family', c_uint8),
            ('sin_port',   c_uint16),
            ('sin_addr',   c_byte * 4),
            ('sin_zero',   c_byte * 8)]
    else:
        _fields_ = [
            ('sin_family', c_ushort),
            ('sin_port',   c_uint16),
            ('sin_addr',   c_byte * 4)]

class struct_sockaddr_in6(Structure):
    if IS_DARWIN:
        _fields_ = [
            ('sin6_len',      c_uint8),
            ('sin6_family',   c_uint8),
            ('sin6_port',     c_uint16),
            ('sin6_flowinfo', c_uint32),
            ('sin6_addr',     c_byte * 16),
            ('sin6_scope_id', c_uint32)]
    else:
        _fields_ = [
            ('sin6_family',   c_ushort),
            ('sin6_port',     c_uint16),
            ('sin6_flowinfo', c_uint32),
            ('sin6_addr',     c_byte * 16),
            ('sin6_scope_id', c_uint32)]

# sockaddr structures for hardware addresses
# MacOS uses "struct sdl" whereas "struct ll" describes linux hw addresses
#
class struct_sockaddr_dl(Structure):
    _fields_ = [
        ('sdl_len',     c_uint8),
        ('sdl_family',  c_uint8),
        ('sdl_index',   c_uint16),
        ('sdl_type',    c_uint8),
        ('sdl_nlen',    c_uint8),
        ('sdl_alen',    c_uint8),
        ('sdl_slen',    c_uint8),
        ('sdl_data',    c_uint8 * 256),]

class struct_sockaddr_ll(Structure):
    _fields_ = [
        ('sll_family',   c_uint16),
        ('sll_protocol', c_uint16),
        ('sll_ifindex',  c_int),
        ('sll_hatype',   c_uint16),
        ('sll_pkttype',  c_uint8),
        ('sll_halen',    c_uint8),
        ('sll_data',     c_uint8 * 8),]

# Simplified version of "struct ifaddr"
#
class struct_ifaddrs(Structure):
    pass

struct_ifaddrs._fields_ = [
    ('ifa_next',    POINTER(struct_ifaddrs)),
    ('ifa_name',    c_char_p),
    ('ifa_flags',   c_uint),
    ('ifa_addr',    POINTER(struct_sockaddr)),
    ('ifa_netmask', POINTER(struct_sockaddr)),
    ('ifa_dstaddr', POINTER(struct_sockaddr)),
    ('ifa_data',    c_void_p),]

#############################################################################
#
# snapshot records
#
# IfaddrRecord is one decoded getifaddrs() entry. 'address' holds the packed
# address bytes (in_addr, in6_addr or the hardware address)
#
IfaddrRecord = collections.namedtuple(
    "IfaddrRecord", "name flags family address netmask scope_id")

# AddressEntry is what callers get back: one IP address bound to an interface
#
AddressEntry = collections.namedtuple(
    "AddressEntry", "address family internal netmask mac scope_id")

#######################################################
#
libc = None

def load_libc():
    """ load the C library the first time it is needed """

    global libc

    if libc is not None:
        return libc

    if not IS_SUPPORTED:
        logger.error("platform %s is not supported", sys.platform)
        raise PlatformQueryFailed("platform %s is not supported" % sys.platform)

    try:
        clib = ctypes.CDLL(ctypes.util.find_library('c'), use_errno=True)
    except OSError as excp:
        logger.error("cannot load the C library: %s", str(excp))
        raise PlatformQueryFailed("cannot load the C library: %s" % excp) from excp

    clib.getifaddrs.restype  = c_int
    clib.getifaddrs.argtypes = [POINTER(POINTER(struct_ifaddrs))]
    clib.freeifaddrs.restype  = None
    clib.freeifaddrs.argtypes = [POINTER(struct_ifaddrs)]

    libc = clib
    return libc

def ifap_iter(ifap):
    """ generator to iterate over interfaces """

    if not ifap:
        return

    ifa = ifap.contents
    while True:
        yield ifa
        if not ifa.ifa_next:
            break
        ifa = ifa.ifa_next.contents

def sockaddr_family(psa):
    """ address family of a sockaddr pointer, None for a null pointer """

    if not psa:
        return None

    return psa.contents.sa_family

def sockaddr_bytes(psa, fam=None):
    """ packed address and IPv6 scope id held in a sockaddr
        depending on the family it belongs to, or on 'fam' if given """

    if not psa:
        return None, 0

    if fam is None:
        fam = sockaddr_family(psa)

    if fam == AF_INET:
        sin = cast(psa, POINTER(struct_sockaddr_in)).contents
        return bytes(sin.sin_addr), 0

    if fam == AF_INET6:
        sin6 = cast(psa, POINTER(struct_sockaddr_in6)).contents
        return bytes(sin6.sin6_addr), sin6.sin6_scope_id

    if islayer2(fam):
        if IS_DARWIN:
            sdl = cast(psa, POINTER(struct_sockaddr_dl)).contents
            return bytes(sdl.sdl_data[sdl.sdl_nlen:sdl.sdl_nlen+sdl.sdl_alen]), 0
        sll = cast(psa, POINTER(struct_sockaddr_ll)).contents
        return bytes(sll.sll_data[:sll.sll_halen]), 0

    return None, 0

def read_ifaddrs():
    """ call getifaddrs() once and decode every entry into an IfaddrRecord
        the C list is released before returning """

    clib = load_libc()

    ifap = POINTER(struct_ifaddrs)()
    if clib.getifaddrs(pointer(ifap)) != 0:
        err = get_errno()
        logger.error("getifaddrs failed (%d)", err)
        raise PlatformQueryFailed("getifaddrs failed", err)

    try:
        records = []
        for ifa in ifap_iter(ifap):

            name = ifa.ifa_name.decode(GETIFADDRS_ENCODING)
            fam  = sockaddr_family(ifa.ifa_addr)

            address, scope_id = sockaddr_bytes(ifa.ifa_addr)
            netmask = None

            # the netmask family is not always set (MacOS)
            # we must use the parent address family
            #
            if fam in (AF_INET, AF_INET6):
                netmask, _ = sockaddr_bytes(ifa.ifa_netmask, fam)

            records.append(IfaddrRecord(name, ifa.ifa_flags, fam,
                                        address, netmask, scope_id))

        logger.debug("getifaddrs returned %d entries", len(records))

        return records
    finally:
        clib.freeifaddrs(ifap)

def collect_interfaces(records):
    """ build the interface name -> [AddressEntry] mapping out of raw records
        interfaces are kept in the order the OS first reports them
        only interfaces that are up and running and carry IP addresses show up """

    macs = {}
    for rec in records:
        if islayer2(rec.family) and rec.address is not None:
            macs.setdefault(rec.name, print_macaddress(rec.address))

    interfaces = {}
    for rec in records:

        if rec.family not in familymap or rec.address is None:
            continue

        if not isactive(rec.flags):
            continue

        netmask = None
        if rec.netmask:
            netmask = inet_ntop(rec.family, rec.netmask)

        entry = AddressEntry(inet_ntop(rec.family, rec.address),
                             familymap[rec.family],
                             isloop(rec.flags),
                             netmask,
                             macs.get(rec.name, ""),
                             rec.scope_id)

        interfaces.setdefault(rec.name, []).append(entry)

    return interfaces

def get_network_interfaces():
    """ fresh snapshot of the host interfaces: {name: [AddressEntry, ...]}
        raise PlatformQueryFailed if the OS cannot be queried """

    return collect_interfaces(read_ifaddrs())

__all__ = ["AddressEntry", "IfaddrRecord", "FAMILY_IPV4", "FAMILY_IPV6",
           "get_network_interfaces", "collect_interfaces", "read_ifaddrs"]

if __name__ == '__main__':

    for ifname, entries in get_network_interfaces().items():
        print("%s:" % ifname)
        for entry in entries:
            print("\t%s" % str(entry))
