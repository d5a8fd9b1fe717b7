"""Setup configuration for DraftGate package."""
from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

install_requires = [
    "google-generativeai>=0.3.0",
    "keyboard>=0.13.5",
    "pynput>=1.7.6",
    "pywin32>=306",
    "pywinauto>=0.6.8",
    "pystray>=0.19.5",
    "Pillow>=10.0.0",
]

setup(
    name="draftGate",
    version="1.0.0",
    author="DraftGate Project",
    author_email="",
    description="Checks chat messages with Gemini before they are sent, on Windows",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Text Processing :: Linguistic",
        "Topic :: Communications :: Chat",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: Microsoft :: Windows :: Windows 10",
        "Operating System :: Microsoft :: Windows :: Windows 11",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Environment :: Win32 (MS Windows)",
        "Natural Language :: English",
    ],
    keywords="text-correction chat slack send-gate ai gemini windows ui-automation",
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "draftgate=draftGate.main:main",
        ],
    },
    zip_safe=False,
    platforms=["Windows"],
    license="MIT",
)
