'''Quick Start - Tabular Insights'''
import json

from tabular_insights import analyze_records, parse_csv
from tabular_insights.service import AnalysisService
from tabular_insights.visualizations import TrendChart

csv_text = """region,units,total
North,10,2500
South,5,1300
North,8,2000"""

result = analyze_records(parse_csv(csv_text))
print('Summary:', result['summary'])
print('Insights:', result['insights'])
print('Chart:', TrendChart(result).plot_trends())

response = AnalysisService().handle({'content': json.dumps([{'sku': 'A-1', 'price': '$12.50'}]), 'fileType': 'json'})
print('\nHTTP', response['status'])
print(response['body']['largeNarrative'])
