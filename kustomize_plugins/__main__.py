"""Run the kustomize-plugins command line tool."""

from kustomize_plugins.tool.kustomize_plugins import main

if __name__ == "__main__":
    main()
