# -*- coding: utf-8 -*-
"""
mcpm 核心：项目路径与项目文档
"""
