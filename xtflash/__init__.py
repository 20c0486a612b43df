"""Android Flash Tool XT - detect, flash and log Android devices over adb/fastboot"""

__version__ = "1.0.0"
