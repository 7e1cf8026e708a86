"""Reporter that produces a text summary of a resampling run."""
from datetime import datetime
import logging
import math

import pandas as pd
from tabulate import tabulate
from jinja2 import Template

from cres.reporter.reporter import FileReporter

class SummaryReporter(FileReporter):
    """A text based report of a cres run.

    The report is always logged, and written to `file_path` if one is
    given.

    """

    DEFAULT_MODE = 'w'

    SUMMARY_TEMPLATE = \
"""* Run

Datetime: {{ date_time }}

Number of events: {{ n_events }}
Number of partitions: {{ n_partitions }}
Events without outgoing particles: {{ n_passthrough }}

* Weights

{{ weights_table }}

* Cells

Number of cells: {{ n_cells }}
Cells with negative weight: {{ n_negative_cells }}
Cells capped by the maximum size: {{ n_capped_cells }}
Events in capped cells: {{ n_capped_events }}
Median radius: {{ median_radius }}

* Partitions

{{ partitions_table }}

* Performance

Resampling Time: {{ resampling_time }} s
{% if unweighting_time is not none %}Unweighting Time: {{ unweighting_time }} s{% endif %}
"""

    PARTITION_COLNAMES = ('partition', 'n_events', 'n_cells', 'n_negative_cells',
                          'n_capped_cells', 'n_capped_events', 'median_radius',
                          'final_negative_fraction',
                          'task_time (s)',)

    def __init__(self, file_path=None, mode=None, **kwargs):

        super().__init__(file_path=file_path, mode=mode, **kwargs)

        self.summary_str = None

    def gen_weights_table(self, summary):

        weights_df = pd.DataFrame(
            {'sum' : [summary['initial_sum'], summary['final_sum']],
             'error' : [summary['initial_error'], summary['final_error']],
             'negative_fraction' : [summary['initial_negative_fraction'],
                                    summary['final_negative_fraction']]},
            index=['initial', 'final'])

        return tabulate(weights_df,
                        headers=weights_df.columns,
                        tablefmt='orgtbl')

    def gen_partitions_table(self, partition_summaries, task_times):

        if task_times is None or len(task_times) != len(partition_summaries):
            task_times = [math.nan for _ in partition_summaries]

        rows = []
        for idx, (summary, task_time) in enumerate(zip(partition_summaries, task_times)):
            rows.append((idx,
                         summary['n_events'],
                         summary['n_cells'],
                         summary['n_negative_cells'],
                         summary['n_capped_cells'],
                         summary['n_capped_events'],
                         summary['median_radius'],
                         summary['final_negative_fraction'],
                         task_time))

        partitions_df = pd.DataFrame(rows, columns=self.PARTITION_COLNAMES)

        return tabulate(partitions_df,
                        headers=partitions_df.columns,
                        tablefmt='orgtbl',
                        showindex=False)

    def report(self, summary=None, partition_summaries=None,
               task_times=None, resampling_time=None, unweighting_time=None,
               **kwargs):

        if partition_summaries is None:
            partition_summaries = []

        self.summary_str = Template(self.SUMMARY_TEMPLATE).render(
            date_time=datetime.today().isoformat(),
            n_events=summary['n_events'],
            n_partitions=len(partition_summaries),
            n_passthrough=summary['n_passthrough'],
            weights_table=self.gen_weights_table(summary),
            n_cells=summary['n_cells'],
            n_negative_cells=summary['n_negative_cells'],
            n_capped_cells=summary['n_capped_cells'],
            n_capped_events=summary['n_capped_events'],
            median_radius=summary['median_radius'],
            partitions_table=self.gen_partitions_table(partition_summaries, task_times),
            resampling_time=resampling_time,
            unweighting_time=unweighting_time,
        )

        logging.info("Run summary:\n{}".format(self.summary_str))

        if self.file_path is not None:
            with open(self.file_path, mode=self.mode) as summary_file:
                summary_file.write(self.summary_str)
