"""
Job Function Loader
Loads a job module (by dotted name or file path) and hands out its map,
reduce and combiner functions
"""

import functools
import importlib
import importlib.util
import os


class FunctionLoader:
    """Loads map/reduce functions from a job module"""

    def __init__(self, job: str, params: dict = None):
        """
        Initialize the function loader

        Args:
            job: Dotted module name (e.g. 'docindex.jobs.count_pairs') or path to a .py file
            params: Keyword arguments bound to the map function
        """
        self.job = job
        self.params = dict(params or {})
        self.module = None

    def load_module(self):
        """
        Import the job module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If the job is a path that doesn't exist
            ModuleNotFoundError: If the job is a module name that can't be imported
        """
        if self.module is not None:
            return self.module

        if self.job.endswith('.py'):
            if not os.path.exists(self.job):
                raise FileNotFoundError(f"Job file not found: {self.job}")
            name = os.path.splitext(os.path.basename(self.job))[0]
            spec = importlib.util.spec_from_file_location(f"docindex_job_{name}", self.job)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(self.job)
        self.module = module
        return module

    def _get(self, name: str, required: bool = True):
        if not self.module:
            self.load_module()

        if not hasattr(self.module, name):
            if required:
                raise AttributeError(f"Job module must define '{name}'")
            return None
        return getattr(self.module, name)

    def get_map_function(self):
        """
        Get the map function with job params bound

        Raises:
            AttributeError: If module doesn't define 'map_function'
        """
        map_func = self._get('map_function')
        if self.params:
            return functools.partial(map_func, **self.params)
        return map_func

    def get_reduce_function(self):
        """
        Raises:
            AttributeError: If module doesn't define 'reduce_function'
        """
        return self._get('reduce_function')

    def get_combiner_function(self):
        """
        Get combiner function from loaded module

        Returns:
            The combiner_function callable, or reduce_function as default, or None.
            A module that sets combiner_function = None opts out of combining.
        """
        if not self.module:
            self.load_module()

        if hasattr(self.module, 'combiner_function'):
            return self.module.combiner_function
        return self._get('reduce_function', required=False)
