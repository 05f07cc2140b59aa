'''
Trend Chart
Render the ranked groups of an analysis as a horizontal bar chart
'''

import logging
import re
from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from tabular_insights.analysis import AnalysisResult, format_number

log = logging.getLogger(__name__)


class TrendChart:
    '''Horizontal bar chart of AnalysisResult trends'''

    def __init__(self, result: AnalysisResult, output_dir: str = 'assets'):
        self.result = result
        self.output_dir = Path(output_dir)

    def plot_trends(self, save: bool = True) -> Optional[str]:
        '''Plot the ranked groups, largest on top. None when there are no trends.'''
        trends = self.result['trends']
        if not trends:
            log.debug('No trends to plot.')
            return None

        headers = self.result['table']['headers']
        dimension, measure = headers[0], headers[1]
        data = pd.DataFrame(trends)

        fig, ax = plt.subplots(figsize=(10, max(3, 0.6 * len(data) + 1.5)))
        sns.barplot(data=data, x='value', y='label', color='steelblue', edgecolor='black', ax=ax)
        ax.set_title(f'{measure} by {dimension}', fontsize=14, fontweight='bold')
        ax.set_xlabel(measure)
        ax.set_ylabel(dimension)
        ax.grid(axis='x', alpha=0.3)

        for patch, value in zip(ax.patches, data['value']):
            ax.text(patch.get_width(), patch.get_y() + patch.get_height() / 2,
                    f' {format_number(value)}', va='center', fontsize=9)

        if save:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            stem = re.sub(r'[^\w.-]+', '_', f'trends_{measure}_by_{dimension}')
            filepath = self.output_dir / f'{stem}.png'
            plt.savefig(filepath, dpi=150, bbox_inches='tight')
            plt.close(fig)
            log.info(f'Saved trend chart to {filepath}')
            return str(filepath)
        else:
            plt.show()
            return None
