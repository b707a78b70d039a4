"""
The suite every scenario module registers into.
"""

from imagetest.runner.suite import Suite

suite = Suite()
scenario = suite.scenario

# Paths inside the builder and runtime images
APP_DIR = "/opt/app-root/app"
SOURCE_DIR = "/opt/app-root/src"
S2I_SCRIPTS = "/usr/libexec/s2i"

# Default (non-root) user of the images
DEFAULT_UID = 1001
# Arbitrary uid, as assigned by platforms that randomize the user
OTHER_UID = 12345
