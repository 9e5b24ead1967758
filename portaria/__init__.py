# SPDX-License-Identifier: Apache-2.0

"""
Portaria - building visitor check-in/check-out register.
"""

__version__ = "1.0.0"
