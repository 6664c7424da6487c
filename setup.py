from setuptools import setup, find_packages

setup(
    name="housekeep-tools",
    version="1.0.0",
    description="Operator command-line tools for file-system housekeeping",
    author="Ashwin Nair",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "argcomplete>=3.0",
        "PyYAML>=6.0",
        "rich>=13.0",
        "tqdm>=4.60",
        "pywin32>=306; sys_platform == 'win32'",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "hk-backup = apps.cli:cli_backup",
            "hk-rename-by-date = apps.cli:cli_rename_by_date",
            "hk-prune-empty-dirs = apps.cli:cli_prune_empty_dirs",
            "hk-pattern-rename = apps.cli:cli_pattern_rename",
            "hk-config = common.shared.loader:cli_main",
        ],
    },
)
