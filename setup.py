"""Package configuration for sprint-analytics.

This file defines installation metadata and console entry points.
"""

import os

import setuptools

# Defer any I/O (like reading README/requirements) until setup is actually
# executed, so importing this module has no side effects.


def main():
    """Entrypoint for invoking setuptools.setup with package metadata."""

    here = os.path.abspath(os.path.dirname(__file__))

    try:
        with open(os.path.join(here, "README.md"), encoding="utf-8") as f:
            long_description = f.read()
    except OSError:
        long_description = ""

    # Only production requirements go into install_requires; test tooling
    # lives in requirements-dev.txt and the `test` extra.
    def read_requirements(filename):
        try:
            with open(os.path.join(here, filename), encoding="utf-8") as f:
                return [
                    line.strip()
                    for line in f.read().splitlines()
                    if line.strip()
                    and not line.strip().startswith("#")
                    and not line.strip().startswith("-r ")
                ]
        except OSError:
            return []

    setuptools.setup(
        name="sprint-analytics",
        version="0.1.0",
        description=(
            "Sprint analytics aggregated from issue tracker and source control data"
        ),
        long_description=long_description,
        long_description_content_type="text/markdown",
        license="MIT",
        keywords="agile jira github sprint velocity analytics",
        packages=setuptools.find_packages(exclude=["contrib", "docs", "tests*"]),
        install_requires=read_requirements("requirements-prod.txt"),
        extras_require={"test": read_requirements("requirements-dev.txt")},
        python_requires=">=3.9",
        include_package_data=True,
        entry_points={
            "console_scripts": [
                "sprint-analytics=sprint_analytics.cli:main",
            ],
        },
    )


if __name__ == "__main__":
    main()
