# ============================================================================
# Command Permissions Manager - Discord Command Override Administration
# Copyright © 2025 404ConnerNotFound. All Rights Reserved.
# ============================================================================
#
# This source code is proprietary and confidential software.
#
# PERMITTED:
#   - View and study the code for educational purposes
#   - Reference in technical discussions with attribution
#   - Report bugs and security issues
#
# PROHIBITED:
#   - Distributing, selling, or sublicensing
#   - Any use that competes with the official service
#
# NO WARRANTY: Provided "AS IS" without warranty of any kind.
# NO LIABILITY: Author not liable for any damages from unauthorized use.
#
# Contact: licensing@404connernotfound.dev
# ============================================================================
