# SPDX-License-Identifier: Apache-2.0

"""
CPF (Cadastro de Pessoas Físicas) normalization and checksum validation.

Pure functions, no I/O.
"""

import re

CPF_LENGTH = 11

_NON_DIGITS = re.compile(r'\D')


def normalize_cpf(value: str) -> str:
    """Strip every non-digit character from a CPF as typed."""
    if not value:
        return ""
    return _NON_DIGITS.sub('', value)


def _check_digit(digits: str, first_weight: int) -> int:
    """Compute one CPF check digit from the weighted sum of ``digits``."""
    total = sum(int(digit) * weight
                for digit, weight in zip(digits, range(first_weight, 1, -1)))
    remainder = (total * 10) % 11
    return 0 if remainder in (10, 11) else remainder


def validate(cpf: str) -> bool:
    """
    Validate a CPF by length and its two trailing check digits.

    Args:
        cpf: CPF in any formatting (punctuation is ignored)

    Returns:
        True if the CPF is well formed
    """
    digits = normalize_cpf(cpf)

    if len(digits) != CPF_LENGTH:
        return False

    # Placeholder numbers such as 111.111.111-11 pass the checksum
    if len(set(digits)) == 1:
        return False

    if _check_digit(digits[:9], 10) != int(digits[9]):
        return False

    return _check_digit(digits[:10], 11) == int(digits[10])


is_valid_cpf = validate


def format_cpf(value: str) -> str:
    """Render a CPF as 000.000.000-00."""
    digits = normalize_cpf(value)
    if len(digits) != CPF_LENGTH:
        raise ValueError(f"CPF must have {CPF_LENGTH} digits")
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
