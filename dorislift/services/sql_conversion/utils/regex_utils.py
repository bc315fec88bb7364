import re

_FLAG_NAMES = {
    'IGNORECASE': re.IGNORECASE,
    'I': re.IGNORECASE,
    'DOTALL': re.DOTALL,
    'S': re.DOTALL,
    'MULTILINE': re.MULTILINE,
    'M': re.MULTILINE,
    'VERBOSE': re.VERBOSE,
    'X': re.VERBOSE,
}


def re_flags(flags_str: str) -> int:
    """
    Convert a flags string from a rule file (e.g. 'IGNORECASE|DOTALL') into
    combined ``re`` flags. Unknown names are ignored.
    """
    flags = 0
    if not flags_str:
        return flags
    for part in flags_str.split('|'):
        flags |= _FLAG_NAMES.get(part.strip().upper(), 0)
    return flags
