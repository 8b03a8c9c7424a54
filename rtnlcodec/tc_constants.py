"""Traffic control handle helpers and attribute constants."""

from __future__ import annotations

TC_H_MAJ_MASK = 0xFFFF0000
TC_H_MIN_MASK = 0x0000FFFF

TC_H_UNSPEC = 0
TC_H_ROOT = 0xFFFFFFFF
TC_H_INGRESS = 0xFFFFFFF1
TC_H_CLSACT = TC_H_INGRESS

TC_H_MIN_PRIORITY = 0xFFE0
TC_H_MIN_INGRESS = 0xFFF2
TC_H_MIN_EGRESS = 0xFFF3

# U32 filter attributes
TCA_U32_UNSPEC = 0
TCA_U32_CLASSID = 1
TCA_U32_HASH = 2
TCA_U32_LINK = 3
TCA_U32_DIVISOR = 4
TCA_U32_SEL = 5
TCA_U32_POLICE = 6
TCA_U32_ACT = 7
TCA_U32_INDEV = 8
TCA_U32_PCNT = 9
TCA_U32_MARK = 10
TCA_U32_FLAGS = 11
TCA_U32_PAD = 12
TCA_U32_MAX = TCA_U32_PAD

# U32 selector flags
TC_U32_TERMINAL = 1
TC_U32_OFFSET = 2
TC_U32_VAROFFSET = 4
TC_U32_EAT = 8
TC_U32_MAXDEPTH = 8

# Action attributes
TCA_ACT_UNSPEC = 0
TCA_ACT_KIND = 1
TCA_ACT_OPTIONS = 2
TCA_ACT_INDEX = 3
TCA_ACT_STATS = 4
TCA_ACT_PAD = 5
TCA_ACT_COOKIE = 6

TCA_ACT_MAX = 7
TCA_OLD_COMPAT = TCA_ACT_MAX + 1
TCA_ACT_MAX_PRIO = 32
TCA_ACT_BIND = 1
TCA_ACT_NOBIND = 0
TCA_ACT_UNBIND = 1
TCA_ACT_NOUNBIND = 0
TCA_ACT_REPLACE = 1
TCA_ACT_NOREPLACE = 0

TC_ACT_UNSPEC = -1
TC_ACT_OK = 0
TC_ACT_RECLASSIFY = 1
TC_ACT_SHOT = 2
TC_ACT_PIPE = 3
TC_ACT_STOLEN = 4
TC_ACT_QUEUED = 5
TC_ACT_REPEAT = 6
TC_ACT_REDIRECT = 7
TC_ACT_TRAP = 8

TC_ACT_VALUE_MAX = TC_ACT_TRAP

TC_ACT_JUMP = 0x10000000

TCA_ACT_TAB = 1
TCAA_MAX = 1

# Mirred action attributes
TCA_MIRRED_UNSPEC = 0
TCA_MIRRED_TM = 1
TCA_MIRRED_PARMS = 2
TCA_MIRRED_PAD = 3
TCA_MIRRED_MAX = TCA_MIRRED_PAD

TCA_EGRESS_REDIR = 1
TCA_EGRESS_MIRROR = 2
TCA_INGRESS_REDIR = 3
TCA_INGRESS_MIRROR = 4


def tc_h_make(major: int, minor: int) -> int:
    """Combine the major part of one handle with the minor part of another."""
    return (major & TC_H_MAJ_MASK) | (minor & TC_H_MIN_MASK)