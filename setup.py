from setuptools import setup, find_packages

setup(
    name="flowkit",
    version="0.1.0",
    description="Model-agnostic multi-step prompt workflows exposed as an MCP tool",
    author="FlowKit Team",
    packages=find_packages(include=["flowkit", "flowkit.*", "config", "config.*", "server"]),
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "click>=8.0.0",
        "psutil>=5.9.0",
        "httpx>=0.24.0",
        "openai>=1.0.0",
        "mcp>=1.0.0,<2",
        "starlette>=0.27.0",
        "uvicorn>=0.23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=22.0.0",
            "isort>=5.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "flowkit=flowkit.cli:main",
            "flowkit-server=server.main:main",
        ],
    },
    python_requires=">=3.11",
)
