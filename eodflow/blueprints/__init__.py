"""
EOD Flow
Blueprint registry.
"""
