# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the Portaria visitor register.

CPF validation is pure; the admission policy orchestrates the visitor
directory and audit log it is constructed with.
"""
