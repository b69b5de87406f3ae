"""Packed Sharing: packed threshold secret sharing over prime fields."""

from .packed import PackedSecretSharing, PRESETS, get_preset
from .packed import PSS_4_8_3, PSS_4_26_3, PSS_155_728_100, PSS_155_19682_100
from .randomness import RandomSource, SystemRandomSource, FixedRandomSource
from .paramgen import generate_parameters, new_scheme
from .dealing import deal, recover, verify_shares, Dealing
from .errors import PackedSharingError, ParameterError, ShareError, NotInvertibleError

__all__ = [
    'PackedSecretSharing', 'PRESETS', 'get_preset',
    'PSS_4_8_3', 'PSS_4_26_3', 'PSS_155_728_100', 'PSS_155_19682_100',
    'RandomSource', 'SystemRandomSource', 'FixedRandomSource',
    'generate_parameters', 'new_scheme',
    'deal', 'recover', 'verify_shares', 'Dealing',
    'PackedSharingError', 'ParameterError', 'ShareError', 'NotInvertibleError',
]
