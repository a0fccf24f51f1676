"""Tooling for building, configuring and maintaining the ArchWSL2 distribution."""
