#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Forward models mapping a parameter vector onto predictions at the
covariates of the data.

    LinearModel:
        A straight line `slope * x + offset`.

    RemoteSpectrumModel:
        A spectrum computed by a remote radiative transfer service.

"""

import io
import logging
import numpy as np
import requests

from .config import ConfigurationError

__all__ = ["Model", "LinearModel", "RemoteSpectrumModel"]

logger = logging.getLogger(__name__)

# Planetary Spectrum Generator API.
PSG_URL = 'https://psg.gsfc.nasa.gov/api.php'


class Model:
    """
    Base class of the forward models.

    Parameters
    ----------
    covariates : `~numpy.ndarray` with shape (npoints,)
        Independent variable of the data.

    """

    def __init__(self, covariates):
        self.covariates = np.atleast_1d(np.asarray(covariates, dtype=float))

    def __call__(self, params):
        return self.predict(params)

    def predict(self, params):
        """Predictions at the covariates for the parameters `params`."""
        raise NotImplementedError


class LinearModel(Model):
    """Straight line with parameters `(slope, offset)`."""

    ndim = 2

    def predict(self, params):
        slope, offset = params
        return slope * self.covariates + offset


class RemoteSpectrumModel(Model):
    """
    Spectrum computed by a remote service from a configuration file.

    The configuration template is a text file in which `{name}` fields are
    replaced by the values of the parameters. The rendered file is posted
    to the service, which replies with two whitespace separated columns:
    wavelengths and the corresponding model values. The spectrum is then
    interpolated onto the covariates.

    Parameters
    ----------
    covariates : `~numpy.ndarray` with shape (npoints,)
        Wavelengths of the data.

    config_template : str
        Text of the configuration sent to the service.

    parameter_names : list of str
        Names of the template fields, in the order of the parameter vector.

    url : str, optional
        Address of the service.

    session : `requests.Session`, optional
        Session used to post the requests. A new one is created if not
        provided.

    timeout : float, optional
        Timeout of a request in seconds.

    """

    def __init__(self,
                 covariates,
                 config_template,
                 parameter_names,
                 url=PSG_URL,
                 session=None,
                 timeout=60.):
        super().__init__(covariates)
        self.config_template = config_template
        self.parameter_names = list(parameter_names)
        self.ndim = len(self.parameter_names)
        self.url = url
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def render(self, params):
        """Configuration file for the parameters `params`."""
        if len(params) != self.ndim:
            raise ConfigurationError(
                f"Expected {self.ndim} parameters, got {len(params)}")
        values = dict(zip(self.parameter_names, (float(p) for p in params)))
        return self.config_template.format(**values)

    def fetch(self, params):
        """
        Post the configuration to the service.

        Returns
        -------
        wavelengths, values : `~numpy.ndarray`
            Spectrum returned by the service, sorted by wavelength.

        """
        response = self.session.post(self.url,
                                     data={
                                         'type': 'rad',
                                         'whdr': 'n',
                                         'file': self.render(params)
                                     },
                                     timeout=self.timeout)
        response.raise_for_status()
        spectrum = np.loadtxt(io.StringIO(response.text),
                              comments='#',
                              ndmin=2)
        if spectrum.shape[1] < 2:
            raise ValueError("The service replied with a single column")
        order = np.argsort(spectrum[:, 0])
        logger.debug('Received %d spectral points from %s', len(spectrum),
                     self.url)
        return spectrum[order, 0], spectrum[order, 1]

    def predict(self, params):
        wavelengths, values = self.fetch(params)
        return np.interp(self.covariates, wavelengths, values)
