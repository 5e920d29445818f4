from setuptools import setup, find_packages

setup(
    name="scenemcp",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "websockets>=13.0",
        "jsonschema>=4.0",
        "PyYAML>=6.0",
        "python-dotenv>=0.19.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21.0",
            "aiohttp>=3.8.0",
            "black>=21.0",
            "flake8>=3.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "scenemcp-server=scenemcp.scripts.run_server:main",
            "scenemcp-chat=scenemcp.scripts.chat:main",
            "scenemcp-tools=scenemcp.scripts.mcp_stdio:main",
        ],
    },
    python_requires=">=3.9",
    description="SceneMCP - text commands for a shared 3D scene over a WebSocket relay",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
