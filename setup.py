from setuptools import setup, find_packages

setup(
    name="tokenloop",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.24.0",        # Sampling math and logits buffers
        "torch>=2.1.0",         # Causal LM forward pass and KV cache
        "tqdm>=4.66.0",         # Prompt ingestion progress bar
        "transformers>=4.36.0", # HuggingFace tokenizer and model loading
        "pyyaml>=6.0",          # YAML parameter files
    ],
    extras_require={
        "dev": [
            "black>=23.12.0",   # Code formatting
            "flake8>=7.0.0",    # Linting
            "pytest>=7.4.0",    # Testing
            "pytest-cov>=4.1.0" # Test coverage
        ]
    },
    entry_points={
        "console_scripts": [
            "tokenloop-chat=tokenloop.chat:main",
        ]
    },
    description="Interactive token-by-token generation loop for causal language models",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "License :: OSI Approved :: MIT License",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Intended Audience :: Science/Research",
        "Development Status :: 3 - Alpha"
    ],
    python_requires=">=3.9",
)
