# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Suite for the Orchestration Core

Structure:
- unit/: Catalog, context, confirmation gate, config and errors
- workflow/: Templates, validation, engine, built-in and file workflows
"""
