# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool orchestration core.

Tool catalog, execution context, confirmation gate and workflow engine for
an AI agent driving media-server connectors.
"""

__version__ = "0.1.0"
