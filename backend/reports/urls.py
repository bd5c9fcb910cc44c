from django.urls import path

from . import views

urlpatterns = [
    path('metrics/', views.FinancialMetricsView.as_view(), name='report-metrics'),
    path('sales-performance/', views.SalesPerformanceView.as_view(), name='report-sales-performance'),
    path('income-statement/', views.IncomeStatementView.as_view(), name='report-income-statement'),
    path('balance-sheet/', views.BalanceSheetView.as_view(), name='report-balance-sheet'),
    path('tax/', views.TaxSummaryView.as_view(), name='report-tax'),
    path('cash-flow/', views.CashFlowView.as_view(), name='report-cash-flow'),
    path('audit-trail/', views.AuditTrailView.as_view(), name='report-audit-trail'),
    path('export/quotations.csv', views.QuotationsExportView.as_view(), name='report-export-quotations'),
    path('export/financial.csv', views.FinancialExportView.as_view(), name='report-export-financial'),
]
