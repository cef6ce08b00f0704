"""Command line tool for kustomize-plugins."""
