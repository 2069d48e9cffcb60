import re
from typing import Optional, Sequence

from vcf_consensus.helpers.constants import MISSING_CALL, MISSING_CHAR, MISSING_MODE
from vcf_consensus.helpers.errors import GenotypeRangeError


_LEADING_DIGITS = re.compile(r"^\d+")


def genotypeCall(token: str) -> str:
    """
    Returns the call a genotype token makes: its leading run of digits
    (eg. '1' for '1|0:35'), or '.' when the token does not start with a digit.
    """
    match = _LEADING_DIGITS.match(token)
    return match.group(0) if match else MISSING_CALL


def resolve(token: str, reference: str, alternates: Sequence[str],
            missing_mode: MISSING_MODE = MISSING_MODE.LAZY,
            missing_char: str = MISSING_CHAR) -> Optional[str]:
    """
    Resolves the text one sample carries at one record.

    :param token: raw genotype token of the sample
    :param reference: reference allele of the record
    :param alternates: alternate alleles of the record
    :param missing_mode: LAZY returns None for missing calls, EAGER returns missing_char
    :param missing_char: filler used for missing calls in EAGER mode
    """
    call = genotypeCall(token)

    if call == MISSING_CALL:
        return None if missing_mode == MISSING_MODE.LAZY else missing_char

    idx = int(call)
    if idx == 0:
        return reference

    # 1 based into the alternates
    if idx > len(alternates):
        raise GenotypeRangeError(f"Genotype '{token}' selects alternate {idx} but only {len(alternates)} alternate(s) are listed")

    return alternates[idx - 1]
