"""vpcctl: create, inspect and delete tagged AWS VPCs."""

__version__ = "0.1.0"
