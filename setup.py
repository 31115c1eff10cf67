import setuptools

with open("README.md", "r", encoding = "utf-8") as fh:
	long_description = fh.read()

setuptools.setup(
	name = "wildfst",
	version = "0.1.0",
	author = "Mans Hulden",
	author_email = "mans.hulden@colorado.edu",
	description = "Wildcard-aware transducer passes for two-level rule compilers",
	long_description = long_description,
	long_description_content_type = "text/markdown",
	classifiers = [
		"Programming Language :: Python :: 3",
		"License :: OSI Approved :: Apache Software License",
		"Operating System :: OS Independent",
	],
	package_dir = {"": "src"},
	packages = setuptools.find_packages(where="src"),
	python_requires = ">=3.8",
	install_requires = [
		"graphviz", "tqdm", "typing_extensions"
	],
	extras_require = {
		"test": ["pytest"],
	},
)
