#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Worker threads for background transfers
"""

from .base_worker import BaseWorkerThread
from .transfer_worker import TransferWorker

__all__ = ['BaseWorkerThread', 'TransferWorker']
