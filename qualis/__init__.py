"""Qualis – top-level package.

Built-in quality profile installation for the Qualis code-quality
platform. See :mod:`qualis.qualityprofile` for the installer and
:mod:`qualis.rules` for the rule catalog.
"""
