"""Test helpers for kustomize-plugins tools."""
